"""intake_server — FastAPI REST API for the tax intake questionnaire.

Exposes the IntakeWizard as a stateless HTTP API: clients walk their intake
by access token, staff create and review intakes with an admin key.
"""
