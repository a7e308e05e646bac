"""BuildTrack package.

Construction-project management backend organized by feature modules
(users, projects, teams, updates, attendance, requests, ...) with a thin
Flask controller layer over service/repository layers.
"""
