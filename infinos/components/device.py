"""Bag device record - cached copy of one row of the devices table"""

from dataclasses import dataclass, field, replace


@dataclass(frozen=True)
class BagDevice:
    """
    Snapshot of a bag device as stored in the device store.

    The engine only reads and writes code, is_claimed, status and
    battery_level. Any other column (name, bag_type, device_secret, ...)
    is carried in `extra` untouched.
    """

    code: str
    is_claimed: bool = False
    status: bool = False
    battery_level: int = 100
    extra: dict = field(default_factory=dict, compare=False)

    # column name in the store -> attribute name
    COLUMNS = {
        'device_code': 'code',
        'is_claimed': 'is_claimed',
        'status': 'status',
        'battery_charge_level': 'battery_level',
    }

    @classmethod
    def from_record(cls, record):
        """Build a device from a raw store row."""
        extra = {k: v for k, v in record.items() if k not in cls.COLUMNS}
        battery = record.get('battery_charge_level')
        return cls(
            code=record['device_code'],
            is_claimed=bool(record.get('is_claimed', False)),
            status=bool(record.get('status', False)),
            battery_level=clamp_battery(100 if battery is None else battery),
            extra=extra,
        )

    def to_record(self):
        record = dict(self.extra)
        record.update({
            'device_code': self.code,
            'is_claimed': self.is_claimed,
            'status': self.status,
            'battery_charge_level': self.battery_level,
        })
        return record

    def with_fields(self, fields):
        """Return a copy with store-named fields applied."""
        changes = {}
        extra = dict(self.extra)
        for column, value in fields.items():
            attr = self.COLUMNS.get(column)
            if attr is None:
                extra[column] = value
            elif attr == 'code':
                raise ValueError("device_code is immutable")
            elif attr == 'battery_level':
                changes[attr] = clamp_battery(value)
            else:
                changes[attr] = bool(value)
        return replace(self, extra=extra, **changes)


def clamp_battery(value):
    return max(0, min(100, int(value)))
