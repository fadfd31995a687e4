"""
LSP WebSocket Bridge.

Expose un serveur de langage stdio (Pyright par défaut) aux clients
WebSocket, avec un processus dédié par connexion.
"""

__version__ = "1.0.0"
