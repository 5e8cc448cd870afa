"""Signal database: descriptors, stores and loaders."""

from canscope.database.schema import ByteOrder, MessageDescriptor, SignalDescriptor
from canscope.database.store import DescriptorLibrary, SignalDescriptorStore
from canscope.database.dbc import load_database, load_dbc, load_json
from canscope.database.profiles import default_library, default_store

__all__ = [
    "ByteOrder",
    "MessageDescriptor",
    "SignalDescriptor",
    "DescriptorLibrary",
    "SignalDescriptorStore",
    "load_database",
    "load_dbc",
    "load_json",
    "default_library",
    "default_store",
]
