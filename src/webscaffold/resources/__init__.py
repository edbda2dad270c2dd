"""Embedded ``.env.<env>.vault`` files shipped with the package."""
