from lodi import db
from lodi.data.core.record_row import RecordRowMixin
from lodi.buisness.logistics.records import Article


class ArticleRow(db.Model, RecordRowMixin):
    """An individually tracked item"""
    __tablename__ = 'article'

    record_type = Article
    key_field = 'article_id'

    article_id = db.Column(db.String(64), primary_key=True)
    current_deposit = db.Column(db.Integer, db.ForeignKey('deposit.id'), nullable=False)
    status = db.Column(db.String(50), nullable=False)  # in_stock/in_transit/processing/delivered or free text

    def __repr__(self):
        return f'<ArticleRow {self.article_id} {self.status}>'
