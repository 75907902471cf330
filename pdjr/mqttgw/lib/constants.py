"""
  File with all constants in project
"""
# Plugin identity (also used as bus update source and logger name)
PLUGIN_ID = "mqttgw"
PLUGIN_NAME = "pdjr-skplugin-mqttgw"
PLUGIN_DESCRIPTION = "Exchange data with an MQTT server"
GATEWAY_LOGGER_NAME = "mqttgw"

# Publication defaults
PUBLICATION_ROOT_DEFAULT = "signalk/"
PUBLICATION_INTERVAL_DEFAULT = 5  # seconds
PUBLICATION_RETAIN_DEFAULT = True
PUBLICATION_META_DEFAULT = False
META_TOPIC_SUFFIX = "/meta"

# Subscription defaults
SUBSCRIPTION_ROOT_DEFAULT = "mqtt."
SUBSCRIPTION_STRICT_DEFAULT = False

# Broker connection
BROKER_REJECT_UNAUTHORISED_DEFAULT = False
BROKER_RECONNECT_PERIOD = 60  # seconds, fixed (no exponential backoff)
MQTT_KEEPALIVE = 60
MQTT_QOS = 1
MQTT_WS_PATH_DEFAULT = "/mqtt"
CLIENT_ID_PREFIX = "mqttgw"

# scheme -> (transport, tls, default port)
BROKER_SCHEMES = {
    "mqtt": ("tcp", False, 1883),
    "tcp": ("tcp", False, 1883),
    "mqtts": ("tcp", True, 8883),
    "ssl": ("tcp", True, 8883),
    "tls": ("tcp", True, 8883),
    "ws": ("websockets", False, 80),
    "wss": ("websockets", True, 443),
}
