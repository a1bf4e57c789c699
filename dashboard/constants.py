TYPE_LABELS = {
    "DAILY_HABIT": "Daily habit",
    "ONE_TIME": "One-time task",
    "PROGRESS": "Progress tracker",
}
PRIORITY_LABELS = {"low": "Low", "medium": "Medium", "high": "High"}
PRIORITY_ICONS = {"low": "🟢", "medium": "🟡", "high": "🔴"}

# Display label -> stored weekday name (the backend also accepts Turkish names).
WEEKDAY_OPTIONS = {
    "Mon": "monday",
    "Tue": "tuesday",
    "Wed": "wednesday",
    "Thu": "thursday",
    "Fri": "friday",
    "Sat": "saturday",
    "Sun": "sunday",
}
DAY_LABELS = list(WEEKDAY_OPTIONS)

BUCKET_LABELS = {
    "upcoming": "Upcoming",
    "pending": "To do",
    "completed": "Done",
}

TAB_OPTIONS = [
    "Today",
    "Calendar",
    "Health",
    "Mental",
    "Productivity",
    "Finance",
    "Statistics",
]

# Quick-log forms: kind -> (title, [(field, label, widget, options)]).
# ``widget`` is one of int, float, text, slider, select.
HEALTH_LOG_FORMS = {
    "water": ("Water", [("amount_ml", "Amount (ml)", "int", {"min_value": 50, "max_value": 3000, "value": 250, "step": 50})]),
    "sleep": (
        "Sleep",
        [
            ("sleep_duration", "Hours slept", "float", {"min_value": 0.5, "max_value": 24.0, "value": 7.5, "step": 0.5}),
            ("sleep_quality", "Quality", "select", {"options": ["poor", "fair", "good", "excellent"], "index": 2}),
        ],
    ),
    "steps": ("Steps", [("steps_count", "Steps", "int", {"min_value": 0, "max_value": 100000, "value": 5000, "step": 500})]),
    "exercise": (
        "Exercise",
        [
            ("exercise_type", "Type", "text", {"value": "walk"}),
            ("duration_minutes", "Minutes", "int", {"min_value": 1, "max_value": 600, "value": 30, "step": 5}),
            ("intensity", "Intensity", "select", {"options": ["low", "moderate", "high"], "index": 1}),
        ],
    ),
    "heart-rate": ("Heart rate", [("heart_rate", "BPM", "int", {"min_value": 30, "max_value": 220, "value": 70})]),
    "nutrition": (
        "Meal",
        [
            ("food_name", "Food", "text", {"value": ""}),
            ("meal_type", "Meal", "select", {"options": ["breakfast", "lunch", "dinner", "snack"], "index": 1}),
            ("calories", "Calories", "int", {"min_value": 0, "max_value": 5000, "value": 500, "step": 50}),
        ],
    ),
    "energy": ("Energy", [("energy_level", "Energy (1-10)", "slider", {"min_value": 1, "max_value": 10, "value": 6})]),
    "stress": ("Stress", [("stress_level", "Stress (1-10)", "slider", {"min_value": 1, "max_value": 10, "value": 4})]),
    "caffeine": (
        "Caffeine",
        [
            ("source", "Source", "select", {"options": ["coffee", "tea", "energy drink", "soda"], "index": 0}),
            ("caffeine_mg", "Caffeine (mg)", "int", {"min_value": 1, "max_value": 1000, "value": 95, "step": 5}),
        ],
    ),
    "alcohol": ("Alcohol", [("drink_type", "Drink", "text", {"value": "beer"})]),
    "smoking": ("Smoking", [("cigarettes_count", "Cigarettes", "int", {"min_value": 1, "max_value": 60, "value": 1})]),
    "symptom": (
        "Symptom",
        [
            ("symptom_name", "Symptom", "text", {"value": ""}),
            ("severity", "Severity (1-10)", "slider", {"min_value": 1, "max_value": 10, "value": 3}),
        ],
    ),
}

MENTAL_LOG_FORMS = {
    "mood": ("Mood", [("mood_score", "Mood (1-10)", "slider", {"min_value": 1, "max_value": 10, "value": 6}), ("mood_label", "Label", "text", {"value": ""})]),
    "motivation": ("Motivation", [("motivation_score", "Motivation (1-10)", "slider", {"min_value": 1, "max_value": 10, "value": 6})]),
    "meditation": (
        "Meditation",
        [
            ("duration_minutes", "Minutes", "int", {"min_value": 1, "max_value": 180, "value": 10}),
            ("meditation_type", "Type", "select", {"options": ["breathing", "mindfulness", "guided", "other"], "index": 1}),
        ],
    ),
    "journal": ("Journal", [("title", "Title", "text", {"value": ""}), ("content", "Entry", "text", {"value": ""})]),
}

EXPENSE_CATEGORIES = ["Food", "Transport", "Housing", "Health", "Fun", "Shopping", "Bills", "Other"]
INCOME_SOURCES = ["Salary", "Freelance", "Gift", "Other"]
GOAL_TYPES = ["weekly", "monthly", "yearly"]

CHART_COLORS = {
    "sleep": "#a9c0e8",
    "water": "#8fc1d4",
    "steps": "#b7d1c9",
    "mood": "#cbb5e2",
    "motivation": "#f2d4a2",
    "expenses": "#e4a5a5",
    "income": "#9ccc9c",
    "focus": "#c9b3e5",
}

# Recurrence rules count weekdays from Sunday = 0.
RULE_DAY_INDEX = {"Sun": 0, "Mon": 1, "Tue": 2, "Wed": 3, "Thu": 4, "Fri": 5, "Sat": 6}
RULE_FREQUENCIES = ["daily", "weekly", "monthly"]
SCHEDULE_MODES = ["Weekdays", "One date", "Repeat rule"]
