"""opc_link_demo package initializer"""
from .core.client import OpcLinkClient
from .core.exceptions import OpcLinkError


__all__ = ["OpcLinkClient", "OpcLinkError"]
