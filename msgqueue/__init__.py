"""
Hosted Message Queue Service

Named queues with SQS-style visibility timeouts: messages are leased with a
pop receipt, stay hidden until the lease expires, and are removed only when
acknowledged with their current receipt.
"""

__version__ = "1.0.0"
