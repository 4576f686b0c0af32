"""
Report Come Play Backend — Services Layer
===========================================

What:  Business logic between the routes (HTTP) and the database.
How:   Each service is a stateless class with a module-level singleton;
       methods take the request's AsyncSession and flush, never commit.

Service Inventory:
    - duplicate_detector: fuzzy name/location matching for new fields
    - FieldService: field CRUD with the duplicate gate and image-count rule
    - ReportService: report CRUD and status-change notifications
    - AuthService: registration, login and email verification
    - UserService: profile updates, own reports and payouts
    - AdminService: user management, payouts, verification, dashboard stats
    - NotificationService: in-app inbox
    - StorageService: image validation and local / Supabase storage
    - EmailService: verification emails through Resend
    - resilience: tenacity retry policy and circuit breaker for outbound HTTP
"""
