from .mqtt_adapter import MQTTOutletAdapter

__all__ = ["MQTTOutletAdapter"]
