"""The local store proxy and its building blocks."""

from recordproxy.proxy.config import ProxyConfig
from recordproxy.proxy.gate import ReadinessGate
from recordproxy.proxy.local import LocalStoreProxy
from recordproxy.proxy.shape import Shape

__all__ = ["LocalStoreProxy", "ProxyConfig", "ReadinessGate", "Shape"]
