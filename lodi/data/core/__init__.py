from lodi.data.core.record_row import RecordRowMixin

__all__ = ['RecordRowMixin']
