"""KurirKan dispatch service: orders, drivers and the pending-order queue."""

__version__ = "0.1.0"
