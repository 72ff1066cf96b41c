"""lifecheck services.

- Stats Service: supervisor dashboard statistics over life-balance check
  results, read-only against the practice's record store
"""
