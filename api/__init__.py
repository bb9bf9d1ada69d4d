"""HTTP API for the scheduled-post delivery service"""
