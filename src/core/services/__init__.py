"""Servicios del Core: comandos one-shot y monitor de salud."""
