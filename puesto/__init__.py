"""
puesto - configuración declarativa del puesto de trabajo.

Detecta drift entre el documento de configuración y la máquina, y lo converge.
"""

__version__ = "1.0.0"
