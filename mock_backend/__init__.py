"""In-memory storefront backend used for local development and tests"""
