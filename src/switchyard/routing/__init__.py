"""Routing: declarations and groups composed into a sealed route table.

Routes are declared during setup (``RouteCollector`` or any other
collector), composed with their group defaults, checked for conflicts
while inserted, and sealed. Matching scans the table in registration
order.
"""
