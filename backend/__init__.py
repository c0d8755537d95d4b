"""Reservation core: fare policy, seat inventory and booking ledger"""
