"""Interfaces/abstracciones del Core.

Define contratos (Protocol) que implementan adaptadores concretos: discovery
de query ids, extractores de payload y proveedores de headers.
"""
