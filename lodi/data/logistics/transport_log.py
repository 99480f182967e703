from lodi import db
from lodi.data.core.record_row import RecordRowMixin
from lodi.buisness.logistics.records import TransportLog


class TransportLogRow(db.Model, RecordRowMixin):
    """
    Audit record written once per travel order.

    Rows are insert-only; nothing in the engine updates or deletes them.
    """
    __tablename__ = 'transport_log'

    record_type = TransportLog
    key_field = 'log_id'

    log_id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    package_id = db.Column(db.String(64), db.ForeignKey('package.id'), nullable=False)
    from_deposit = db.Column(db.Integer, db.ForeignKey('deposit.id'), nullable=False)
    to_deposit = db.Column(db.Integer, db.ForeignKey('deposit.id'), nullable=False)
    created_time = db.Column(db.DateTime, nullable=False)

    def __repr__(self):
        return f'<TransportLogRow {self.log_id} {self.package_id}>'
