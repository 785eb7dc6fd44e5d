"""Search state shared by the API and its clients: occupancy, dates, URL query, routing."""
