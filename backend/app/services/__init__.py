"""Domain services: aggregation, reports, catalogue (buildings, study spaces, users), Radar, live updates."""
