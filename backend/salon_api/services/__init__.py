"""
Services module for business logic.

Layout:
- billing/: Pure billing math (line grouping, totals, money rounding)
- domain/: Application services; each public mutation is one unit of work
- events/: Transactional outbox and subscriber dispatch
- identity.py: Port for the customer recognition collaborator
- engine.py: SalonEngine facade returning typed results

Usage:
    from salon_api.services.domain import SettlementService
    service = SettlementService(db)
    receipt = service.settle_full(order_id, tip_recipient_id=waiter_id)
"""
