"""NewsBreeze: RSS news, summaries and speech behind one small API."""
