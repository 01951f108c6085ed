"""Youth group administration package.

Organized by feature modules (staff, teens, attendance, forms, ...) with a thin
Flask controller layer over service and repository layers.
"""
