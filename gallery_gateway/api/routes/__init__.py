"""
Route modules:
- gateway: catch-all gallery gateway endpoint
- albums: Albumizr migration endpoint
"""
