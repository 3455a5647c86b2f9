"""Adaptadores concretos (HTTP) de los contratos del Core."""
