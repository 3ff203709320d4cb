"""Config subpackage - settings and path discovery."""
