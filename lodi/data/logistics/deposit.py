from lodi import db
from lodi.data.core.record_row import RecordRowMixin
from lodi.buisness.logistics.records import Deposit


class DepositRow(db.Model, RecordRowMixin):
    """A physical storage site and the packages currently staged there"""
    __tablename__ = 'deposit'

    record_type = Deposit
    key_field = 'id'
    sequence_fields = ('packages_on_site', 'outgoing_package_ids')

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(100), nullable=False)

    # Ordered package id lists; outgoing is a subset of on-site until departure
    packages_on_site = db.Column(db.JSON, nullable=False, default=list)
    outgoing_package_ids = db.Column(db.JSON, nullable=False, default=list)

    def __repr__(self):
        return f'<DepositRow {self.id} {self.name}>'
