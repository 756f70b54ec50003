"""Smart hostel leave and attendance package.

Organized by feature modules (users, attendance, leaves, gate, scoring, ...)
with a thin Flask controller layer over service/repository layers.
"""
