"""GroundStation — Failure notifications and environmental waits for an
observatory sequencer.

The package plugs into a host sequencer and provides:

    1. Triggers  — email and MQTT notifications when an instruction fails
    2. Items     — publish an MQTT message, wait for the mirror to cool
    3. Settings  — live configuration store with change subscriptions
    4. Channels  — SMTP and MQTT delivery with cooperative cancellation
"""

__version__ = "0.1.0"
__author__ = "GroundStation Contributors"
__license__ = "MPL-2.0"

from groundstation.sequencer.registry import ItemRegistry, default_registry
from groundstation.settings_store import ConfigurationStore

__all__ = [
    "__version__",
    "ConfigurationStore",
    "ItemRegistry",
    "default_registry",
]
