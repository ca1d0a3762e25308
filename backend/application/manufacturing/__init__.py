"""
Manufacturing use cases.

Each use case loads its inputs through repository ports, asks the
ManufacturingOrderDomainService for a verdict, persists the new order
snapshot and publishes a domain event, all inside one transaction.
"""
