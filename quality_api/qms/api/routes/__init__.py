"""
API route modules.

This package contains subrouters for:
- Auth and Users: login, tokens, passwords and user administration
- Quality, Production and Formulations: plant records
- Notifications and Chat: the bell and conversations
- Dashboards, Reports and Uploads

Routers are included from qms.api.main (under the /api/v1 prefix).
"""
