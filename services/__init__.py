"""Service layer: database access, auth, and review business rules"""
