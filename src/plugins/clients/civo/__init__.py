from plugins.clients.civo.client import CivoClient, CivoSnapshot

__all__ = ["CivoClient", "CivoSnapshot"]
