"""
Report Come Play Backend — API Routes Package
===============================================

Route Inventory:
    - health.py:   GET  /  and  /health
    - auth.py:     /api/auth     register, login, me, verify-email, resend-verification
    - users.py:    /api/users    profile, own reports/payouts, notifications
    - fields.py:   /api/fields   CRUD with duplicate detection on create
    - reports.py:  /api/reports  CRUD, admin status changes
    - admin.py:    /api/admin    users, payouts, stats, field verification
    - upload.py:   POST /api/upload, GET /api/files/{path}

Routes stay thin: parse the request, resolve the user, call one service
method, shape the response. Business rules live in services.
"""
