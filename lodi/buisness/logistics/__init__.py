"""
Logistics business layer.

Main entry point: LogisticsEngine (logistics_engine.py)

- records: immutable Deposit/Package/Article/TransportLog records
- state_machine: package lifecycle and article status codes
- deposit_manifest: on-site / outgoing list bookkeeping for deposits
"""
