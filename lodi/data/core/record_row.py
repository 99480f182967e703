"""
Row <-> record conversion mixin for SQLAlchemy models

Each logistics table is a plain Flask-SQLAlchemy model. Business code never
holds live rows: the record store converts rows into frozen dataclass records
on the way out and copies record fields back onto rows on the way in.

Column names match record field names one to one. Ordered id sequences are
stored as JSON lists and surface as tuples on records.
"""

from dataclasses import fields


class RecordRowMixin:
    """
    Mixin for models that mirror a frozen dataclass record.

    Subclasses set:
    - record_type: the dataclass the row converts to
    - key_field: name of the primary key column / record field
    - sequence_fields: JSON list columns exposed as tuples
    """

    record_type = None
    key_field = 'id'
    sequence_fields = ()

    @classmethod
    def record_field_names(cls):
        return [f.name for f in fields(cls.record_type)]

    @classmethod
    def from_record(cls, record, skip_key=False):
        """
        Build a new row from a record

        Args:
            record: Instance of cls.record_type
            skip_key (bool): Leave the primary key unset so the database assigns it

        Returns:
            Model instance (not added to a session)
        """
        row = cls()
        row.apply_record(record, include_key=not skip_key)
        return row

    def apply_record(self, record, include_key=False):
        """Copy record values onto this row"""
        for name in self.record_field_names():
            if name == self.key_field and not include_key:
                continue
            value = getattr(record, name)
            if name in self.sequence_fields:
                value = list(value)
            setattr(self, name, value)

    def to_record(self):
        """Convert this row into an immutable record"""
        values = {}
        for name in self.record_field_names():
            value = getattr(self, name)
            if name in self.sequence_fields:
                value = tuple(value or ())
            values[name] = value
        return self.record_type(**values)
