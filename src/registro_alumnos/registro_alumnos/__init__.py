"""Registro de alumnos package.

Feature modules (auth, alumnos, familiares, grados, dashboard) each carry a model,
a repository interface with its MySQL implementation, a service and a thin Flask
JSON controller.
"""
