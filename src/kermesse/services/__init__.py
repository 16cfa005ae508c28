"""Services for Kermesse Tickets"""
