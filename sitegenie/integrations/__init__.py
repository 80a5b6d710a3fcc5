"""Clients for the external keyword, backlink, trends, registrar and DNS APIs."""
