"""
FastAPI routers exposing the signup-code services over HTTP.

Routers only translate requests and service exceptions; business rules live
in signupcodes.services.
"""
