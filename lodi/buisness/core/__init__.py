"""
Core business infrastructure: transactional record store, change notification
and the domain error hierarchy shared by every operation.
"""
