# Infrastructure Layer
# ====================
# Contains all external service integrations:
# - config/: Environment and settings management
# - persistence/: SQLite repository (users, businesses, reviews, link configs)
# - state/: Link configuration token codec and state store
# - identity/: Local or Firebase Auth identity provider
# - payments/: Checkout gateway
#
# This layer can be replaced entirely without affecting the domain layer.
