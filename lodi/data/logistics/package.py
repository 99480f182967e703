from lodi import db
from lodi.data.core.record_row import RecordRowMixin
from lodi.buisness.logistics.records import Package


class PackageRow(db.Model, RecordRowMixin):
    """A shipment of articles between two deposits"""
    __tablename__ = 'package'

    record_type = Package
    key_field = 'id'
    sequence_fields = ('contents',)

    id = db.Column(db.String(64), primary_key=True)
    max_load = db.Column(db.Integer, nullable=False)  # advisory, not enforced
    contents = db.Column(db.JSON, nullable=False, default=list)
    state = db.Column(db.String(20), nullable=False)  # Preparing/Prepared/OnTheWay/AtDestination
    source_deposit = db.Column(db.Integer, db.ForeignKey('deposit.id'), nullable=False)
    destination_deposit = db.Column(db.Integer, db.ForeignKey('deposit.id'), nullable=False)

    def __repr__(self):
        return f'<PackageRow {self.id} {self.state}>'
