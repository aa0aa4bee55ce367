"""HallGuardian scan service package.

Feature modules (students, locations, directory, scans, presence, ...) with a
thin Flask controller layer over service/repository layers.
"""
