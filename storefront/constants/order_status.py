ALLOWED_TRANSITIONS = {
    "pending": ["partial", "completed", "processing", "cancelled"],
    "partial": ["completed", "cancelled"],
    "completed": ["processing"],
    "processing": ["shipped", "cancelled"],
    "shipped": [],
    "cancelled": []
}

WALK_IN_ADDRESS = "Walk-in Customer"
NOT_APPLICABLE = "N/A"
