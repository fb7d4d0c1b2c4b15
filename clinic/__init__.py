"""Clinic application for the physician dashboard backend.

Models, services, serializers, views and route registrations for
patients, scheduling, referrals, vaccinations, care teams, billing,
hubs, medication calculators and the audit trail.
"""
