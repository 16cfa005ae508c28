"""Kermesse Tickets - paid event registration with QR door check-in"""
