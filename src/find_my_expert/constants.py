"""Project-wide constants."""

# -- Discovery response format -----------------------------------------------
RECORD_SEPARATOR: str = "---"
IMAGE_URL_SENTINEL: str = "N/A"
EXPERT_LABELS: tuple[str, ...] = (
    "Name",
    "University",
    "Department",
    "Gender",
    "ImageUrl",
    "Expertise",
    "Justification",
)
REQUIRED_EXPERT_LABELS: tuple[str, ...] = ("Name", "University", "Department", "Expertise")

# -- Prompt defaults ----------------------------------------------------------
DEFAULT_REGION_CLAUSE: str = "in the United States"
UNTITLED_SOURCE: str = "Untitled"

# -- Search -------------------------------------------------------------------
INITIAL_SUGGESTIONS: tuple[str, ...] = (
    "Sustainable Agriculture",
    "Neural Networks",
    "18th Century Literature",
    "Urban Planning",
    "Particle Physics",
)
NO_RESULTS_MESSAGE: str = (
    "No experts found for your query. "
    "Please try a different subject or adjust your filters."
)
TRANSPORT_FAILURE_MESSAGE: str = "Failed to fetch expert data from the AI service."
DETAILS_FAILURE_MESSAGE: str = "Could not load details for this expert."

# -- Interview ----------------------------------------------------------------
INTERVIEW_OPENER: str = "Hello, please introduce yourself."
INTERVIEW_FALLBACK_GREETING: str = "Hello! I am ready to answer your questions about my work."
INTERVIEW_ERROR_REPLY: str = "I'm sorry, I encountered an error. Please try again."

# -- Preferences --------------------------------------------------------------
THEMES: tuple[str, ...] = ("light", "dark")
DEFAULT_THEME: str = "light"

# -- Speech voice keywords ----------------------------------------------------
MALE_VOICE_KEYWORDS: tuple[str, ...] = (
    "male",
    "david",
    "mark",
    "fred",
    "alex",
    "rishi",
    "daniel",
)
FEMALE_VOICE_KEYWORDS: tuple[str, ...] = (
    "female",
    "zira",
    "samantha",
    "fiona",
    "karen",
    "moira",
    "tessa",
    "veena",
    "victoria",
    "susan",
    "kathy",
    "ellen",
)
