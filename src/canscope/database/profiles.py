"""Built-in signal database loaded at startup.

Keys are decimal identifiers, as exported by the vehicle tooling.
"""

from __future__ import annotations

from typing import Any

from canscope.database.store import DescriptorLibrary, SignalDescriptorStore

DEFAULT_LIBRARY_NAME = "Vehicle Telemetry"


def _bit(name: str, start_bit: int) -> dict[str, Any]:
    return {
        "name": name,
        "startBit": start_bit,
        "length": 1,
        "isLittleEndian": True,
        "isSigned": False,
        "scale": 1,
        "offset": 0,
        "min": 0,
        "max": 1,
        "unit": "",
    }


DEFAULT_DATABASE: dict[str, dict[str, Any]] = {
    "405274497": {  # 0x1827FF81
        "name": "Odometer",
        "dlc": 8,
        "signals": {
            "Odometer": {
                "name": "Odometer", "startBit": 32, "length": 32, "isLittleEndian": True,
                "isSigned": False, "scale": 0.1, "offset": 0, "min": 0, "max": 0, "unit": "Kms",
            },
            "Trip": {
                "name": "Trip", "startBit": 0, "length": 16, "isLittleEndian": True,
                "isSigned": False, "scale": 0.1, "offset": 0, "min": 0, "max": 6553.5, "unit": "Kms",
            },
        },
    },
    "272170832": {  # 0x1038FF50
        "name": "Battery_Faults",
        "dlc": 8,
        "signals": {
            s["name"]: s
            for s in (
                _bit("Battery Fault", 0),
                _bit("Battery High Temp Fault", 1),
                _bit("Battery High Temp Cutoff Fault", 2),
                _bit("Battery Low Temp Fault", 3),
                _bit("Battery Low Temp Cutoff Fault", 4),
                _bit("Battery Cutoff Over Voltage Fault", 5),
                _bit("Battery Over Voltage Fault", 6),
                _bit("Battery Low Voltage Fault", 7),
                _bit("Battery Cutoff Low Voltage Fault", 8),
                _bit("Output Voltage Failure Fault", 9),
                _bit("Battery Internal Fault", 10),
            )
        },
    },
    "272171088": {  # 0x10390050
        "name": "Battery_Status",
        "dlc": 8,
        "signals": {
            "Pack Voltage": {
                "name": "Pack Voltage", "startBit": 0, "length": 16, "isLittleEndian": True,
                "isSigned": False, "scale": 0.01, "offset": 0, "min": 0, "max": 100, "unit": "V",
            },
            "Pack Current": {
                "name": "Pack Current", "startBit": 16, "length": 16, "isLittleEndian": True,
                "isSigned": True, "scale": 0.1, "offset": 0, "min": -500, "max": 500, "unit": "A",
            },
            "SOC": {
                "name": "SOC", "startBit": 32, "length": 8, "isLittleEndian": True,
                "isSigned": False, "scale": 1, "offset": 0, "min": 0, "max": 100, "unit": "%",
            },
            "Max Cell Temp": {
                "name": "Max Cell Temp", "startBit": 40, "length": 8, "isLittleEndian": True,
                "isSigned": False, "scale": 1, "offset": -40, "min": -40, "max": 125, "unit": "degC",
            },
        },
    },
    "405819456": {  # 0x18305040
        "name": "MCU_Status",
        "dlc": 8,
        "signals": {
            "Motor Speed": {
                "name": "Motor Speed", "startBit": 0, "length": 16, "isLittleEndian": False,
                "isSigned": True, "scale": 1, "offset": 0, "min": -10000, "max": 10000, "unit": "rpm",
            },
            "Motor Temp": {
                "name": "Motor Temp", "startBit": 16, "length": 8, "isLittleEndian": False,
                "isSigned": False, "scale": 1, "offset": -40, "min": -40, "max": 200, "unit": "degC",
            },
            "Controller Temp": {
                "name": "Controller Temp", "startBit": 24, "length": 8, "isLittleEndian": False,
                "isSigned": False, "scale": 1, "offset": -40, "min": -40, "max": 200, "unit": "degC",
            },
        },
    },
}


def default_store() -> SignalDescriptorStore:
    """Store built from :data:`DEFAULT_DATABASE`."""
    return SignalDescriptorStore.from_mapping(DEFAULT_DATABASE)


def default_library() -> DescriptorLibrary:
    return DescriptorLibrary(DEFAULT_LIBRARY_NAME, default_store())
