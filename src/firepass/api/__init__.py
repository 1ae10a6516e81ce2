# FirePass - HTTP API
#
# FastAPI application exposing the vault to the local UI.
