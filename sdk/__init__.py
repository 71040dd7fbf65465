from .host import BoardInfo, CaptureCapability, Host, HotkeyCapability, LocalHost, WindowCapability
from .registry import Registry, default_registry
