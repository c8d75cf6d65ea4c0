"""Video engagement insights: CSV ingestion, per-community metrics, insights and follow-up strategies."""
