"""
Curated vocabularies for entity extraction.

Every entry maps a normalized entity name to a regex fragment. Fragments
are wrapped in word boundaries and matched case-insensitively by
MessageExtractor. Dict order matters: it is the tie-break order for app
categories and the reporting order for everything else.
"""

from typing import Dict, List


# =============================================================================
# App categories
# =============================================================================

# Generic verbs ("like", "share", "post", "play", "track") are left out on
# purpose; they show up in descriptions of every kind of app.
APP_CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "ecommerce": [
        r"shop", r"shopping", r"online store", r"store", r"e-?commerce",
        r"marketplace", r"retail", r"products?", r"cart", r"checkout",
        r"sell(ing)?", r"buy(ing)?", r"vendors?", r"catalog", r"inventory",
    ],
    "social_media": [
        r"social", r"social (network|media)", r"followers?", r"community",
        r"news ?feed", r"timeline", r"friends",
    ],
    "fitness": [
        r"fitness", r"workouts?", r"exercises?", r"gym", r"calories",
        r"muscle", r"cardio", r"running", r"yoga", r"personal trainer",
    ],
    "habit_tracker": [
        r"habits?", r"routines?", r"streaks?", r"self-improvement",
    ],
    "food_recipe": [
        r"food", r"recipes?", r"cook(ing)?", r"meals?", r"dish(es)?",
        r"ingredients?", r"kitchen", r"cuisine", r"baking", r"restaurants?",
    ],
    "todo_productivity": [
        r"to-?dos?", r"tasks?", r"notes?", r"checklists?", r"planner",
        r"productivity", r"deadlines?", r"organi[sz]er",
    ],
    "messaging_chat": [
        r"messaging", r"messenger", r"chat app", r"instant messag\w*",
        r"whatsapp", r"telegram", r"texting",
    ],
    "education": [
        r"learn(ing)?", r"education(al)?", r"courses?", r"lessons?",
        r"quiz(zes)?", r"study", r"students?", r"teachers?", r"tutor(ing|s)?",
        r"exams?", r"school", r"e-learning",
    ],
    "game": [
        r"games?", r"gaming", r"players?", r"arcade", r"puzzles?",
        r"racing", r"multiplayer", r"leaderboards?",
    ],
    "finance": [
        r"finance", r"financial", r"money", r"budget(ing|s)?", r"expenses?",
        r"income", r"bank(ing)?", r"invest(ing|ments?)?", r"stocks?",
        r"crypto(currency)?",
    ],
    "dating": [
        r"dating", r"matchmaking", r"relationships?", r"singles", r"swip(e|ing)",
    ],
    "travel": [
        r"travel(l?ing)?", r"trips?", r"flights?", r"hotels?", r"vacations?",
        r"destinations?", r"tourism", r"itinerar(y|ies)",
    ],
    "music": [
        r"music", r"songs?", r"playlists?", r"artists?", r"albums?", r"podcasts?",
    ],
    "video": [
        r"videos?", r"movies?", r"films?", r"youtube", r"netflix", r"series",
    ],
    "photo": [
        r"photos?", r"photography", r"pictures?", r"images?", r"photo editing",
    ],
    "news": [
        r"news", r"articles?", r"blog(s|ging)?", r"magazines?", r"journalism",
    ],
    "weather": [
        r"weather", r"forecasts?", r"temperature", r"climate",
    ],
    "meditation": [
        r"meditation", r"meditate", r"mindfulness", r"relax(ation)?",
        r"calm", r"breathing",
    ],
    "pet_care": [
        r"pets?", r"dogs?", r"cats?", r"puppy", r"vet", r"veterinar\w*",
    ],
    "real_estate": [
        r"real estate", r"propert(y|ies)", r"houses?", r"apartments?",
        r"rental", r"lease", r"landlords?", r"tenants?",
    ],
    "healthcare": [
        r"healthcare", r"medical", r"doctors?", r"patients?", r"symptoms?",
        r"medicine", r"medications?", r"hospital", r"clinic", r"telemedicine",
    ],
    "booking": [
        r"booking", r"bookings", r"reservations?", r"appointments?",
        r"salon", r"barber",
    ],
    "delivery": [
        r"delivery", r"deliveries", r"couriers?", r"shipping", r"parcels?",
        r"drivers?",
    ],
    "crm": [
        r"crm", r"leads?", r"sales pipeline", r"pipeline",
        r"client management", r"customer relationship",
    ],
    "hr": [
        r"hr", r"human resources", r"employees?", r"staff", r"payroll",
        r"attendance", r"recruitment", r"hiring",
    ],
}

# Extra weight when the category keyword is immediately followed by "app"
CATEGORY_APP_PHRASE_BONUS = 2


# =============================================================================
# Features
# =============================================================================

FEATURE_PATTERNS: Dict[str, str] = {
    "authentication": r"login|log in|signup|sign up|sign in|register|registration|authentication|auth|accounts?",
    "social_login": r"google login|facebook login|social login|oauth|apple login|sign in with (google|apple|facebook)",
    "password_reset": r"forgot password|reset password|password recovery",
    "email_verification": r"email verification|verify email|confirmation email",
    "two_factor_auth": r"2fa|two factor|two-factor|authentication code",
    "user_profile": r"profiles?|user profiles?|account settings|my account|bio",
    "avatar_upload": r"profile picture|avatar|profile photo",
    "settings": r"settings|preferences",
    "notifications": r"notifications?|alerts?|reminders?|remind",
    "push_notifications": r"push notifications?|mobile notifications?",
    "email_notifications": r"email notifications?|email alerts?",
    "chat": r"chat|messaging|direct messages?|dms?|conversations?",
    "group_chat": r"group chats?|group messages?|channels?",
    "voice_call": r"voice calls?|audio calls?|phone calls?",
    "video_call": r"video calls?|video chat|webcam",
    "file_sharing": r"file sharing|share files?|attach files?|send files?|attachments?",
    "media_upload": r"upload(s|ing)?|photo upload|image upload|video upload",
    "camera": r"camera|take (a )?photos?|capture",
    "gallery": r"gallery|photo library|albums",
    "search": r"search(ing)?|browse|browsing|discover|lookup",
    "filters": r"filters?|filtering|sort(ing)?|categories",
    "favorites": r"favou?rites?|bookmarks?|starred",
    "like": r"likes|upvotes?|hearts|thumbs up",
    "comment": r"comments?|commenting|replies",
    "share": r"share|sharing",
    "follow": r"follow(ing)?|unfollow|subscribe",
    "feed": r"feed|timeline|news feed",
    "stories": r"story|stories",
    "live_streaming": r"live ?stream(ing)?|broadcast|go live",
    "payment": r"payments?|purchases?|pay|in-app purchases?",
    "checkout": r"checkout|check out",
    "stripe": r"stripe",
    "paypal": r"paypal",
    "credit_card": r"credit cards?|debit cards?|card payments?",
    "subscription": r"subscriptions?|recurring payments?|premium plan|membership",
    "cart": r"cart|shopping cart|basket",
    "wishlist": r"wishlists?|wish list|save for later",
    "reviews": r"reviews?|ratings?|rate|feedback",
    "location": r"location|gps|geolocation|nearby",
    "maps": r"maps?|google maps|navigation|directions",
    "qr_code": r"qr codes?|qr scanner",
    "barcode": r"barcodes?|scan barcodes?",
    "calendar": r"calendar|schedul(e|ing)|date picker|events?",
    "booking": r"bookings?|reservations?|appointments?|time slots?",
    "tracking": r"track(ing)?|progress tracking|order tracking",
    "gamification": r"points|badges|achievements|rewards|leaderboards?",
    "analytics": r"analytics|statistics|stats|insights|metrics",
    "dashboard": r"dashboards?|overview|reports?",
    "admin_panel": r"admin|admin panel|control panel|back ?office",
    "multi_language": r"multi-?language|translations?|localization|i18n",
    "dark_mode": r"dark mode|dark theme|night mode",
    "offline_mode": r"offline|offline mode|work offline|no internet",
    "sync": r"sync|synchroni[sz]e|cloud sync",
    "export": r"export|download|save as",
    "import": r"import|upload data|restore",
    "pdf_generation": r"pdfs?|generate pdfs?",
    "email": r"emails?|send email|mail",
    "sms": r"sms|text messages?",
}

# Features that are really implementation details of a broader one; when both
# match, only the specific one is reported.
FEATURE_SUPERSEDES: Dict[str, List[str]] = {
    "push_notifications": ["notifications"],
    "email_notifications": ["notifications", "email"],
    "group_chat": ["chat"],
    "video_call": ["chat"],
    "social_login": ["authentication"],
    "password_reset": ["authentication"],
    "email_verification": ["email"],
    "avatar_upload": ["user_profile", "media_upload"],
    "credit_card": ["payment"],
}


# =============================================================================
# Design
# =============================================================================

COLORS: List[str] = [
    "red", "blue", "green", "yellow", "purple", "pink", "orange", "black",
    "white", "gray", "grey", "cyan", "magenta", "brown", "gold", "silver",
    "violet", "indigo", "turquoise", "navy", "maroon", "teal", "lime",
    "olive", "coral", "salmon", "peach", "lavender", "mint",
]

DESIGN_STYLES: Dict[str, str] = {
    "modern": r"modern",
    "minimal": r"minimal(ist|istic)?",
    "dark": r"dark( mode| theme)?",
    "light": r"light mode|light theme",
    "colorful": r"colou?rful",
    "vibrant": r"vibrant",
    "pastel": r"pastels?",
    "professional": r"professional",
    "playful": r"playful",
    "elegant": r"elegant",
    "simple": r"simple",
    "clean": r"clean",
    "bold": r"bold",
    "flat": r"flat( design)?",
    "material": r"material( design)?",
    "glassmorphism": r"glassmorphism",
    "neumorphism": r"neumorphism",
    "gradient": r"gradients?",
    "animated": r"animated|animations?",
    "responsive": r"responsive",
    "card_based": r"card-?based|cards layout",
}


# =============================================================================
# Platforms / technologies / competitors
# =============================================================================

PLATFORM_PATTERNS: Dict[str, str] = {
    "ios": r"ios|iphone|ipad|app store",
    "android": r"android|google play",
    "web": r"web|website|web app|browser",
    "desktop": r"desktop|windows|macos|linux",
    "mobile": r"mobile|phones?|smartphones?",
}

TECHNOLOGY_PATTERNS: Dict[str, str] = {
    "react": r"react( native)?",
    "vue": r"vue(\.?js)?",
    "angular": r"angular",
    "flutter": r"flutter",
    "node": r"node(\.?js)?",
    "python": r"python|django|flask|fastapi",
    "java": r"java",
    "swift": r"swift|swiftui",
    "kotlin": r"kotlin",
    "firebase": r"firebase",
    "supabase": r"supabase",
    "mongodb": r"mongo(db)?",
    "postgresql": r"postgres(ql)?",
    "mysql": r"mysql",
    "redis": r"redis",
    "aws": r"aws|amazon web services",
    "azure": r"azure",
    "gcp": r"gcp|google cloud",
    "docker": r"docker",
    "kubernetes": r"kubernetes|k8s",
    "stripe": r"stripe",
    "paypal": r"paypal",
    "twilio": r"twilio",
    "sendgrid": r"sendgrid",
    "cloudinary": r"cloudinary",
    "google_maps": r"google maps",
    "api": r"apis?|rest api",
    "graphql": r"graphql",
    "websocket": r"websockets?",
    "database": r"databases?",
    "real_time": r"real-?time",
    "oauth": r"oauth",
    "encryption": r"encrypt(ed|ion)|end-to-end",
}

COMPETITORS: List[str] = [
    "instagram", "facebook", "twitter", "tiktok", "snapchat", "linkedin",
    "amazon", "ebay", "shopify", "etsy", "walmart",
    "uber", "lyft", "doordash", "grubhub", "airbnb",
    "netflix", "spotify", "youtube", "hulu",
    "whatsapp", "telegram", "discord", "slack", "zoom",
    "duolingo", "coursera", "udemy", "skillshare",
    "tinder", "bumble", "hinge",
    "notion", "trello", "asana", "todoist",
    "strava", "myfitnesspal", "headspace", "calm app",
]


def humanize(name: str) -> str:
    """'user_profile' -> 'user profile'"""
    return name.replace("_", " ")


# =============================================================================
# Category-specific feature vocabulary (used for feature-density scoring)
# =============================================================================

CATEGORY_FEATURES: Dict[str, List[str]] = {
    "ecommerce": [
        "product listing", "products", "shopping cart", "cart", "checkout",
        "payment gateway", "product search", "filters", "categories",
        "wishlist", "reviews", "ratings", "order tracking", "orders",
        "address", "coupons", "discounts", "inventory", "shipping",
    ],
    "social_media": [
        "profiles", "news feed", "feed", "posts", "likes", "comments",
        "shares", "follow", "stories", "direct messages", "notifications",
        "hashtags", "mentions", "photo upload", "video upload", "explore",
    ],
    "fitness": [
        "workout tracking", "workouts", "exercise library", "calorie counter",
        "step counter", "goals", "progress tracking", "nutrition",
        "weight tracking", "workout plans", "timer", "achievements",
        "wearables", "challenges",
    ],
    "habit_tracker": [
        "habits", "streaks", "reminders", "check-ins", "goals", "progress",
        "statistics", "calendar", "charts", "journal",
    ],
    "food_recipe": [
        "recipes", "ingredients", "cooking instructions", "meal planning",
        "meal plans", "grocery list", "shopping list", "timers",
        "nutritional info", "favorites", "dietary filters", "cooking videos",
    ],
    "todo_productivity": [
        "tasks", "due dates", "priorities", "projects", "tags", "labels",
        "reminders", "calendar view", "recurring tasks", "subtasks", "notes",
        "attachments", "templates", "collaboration", "time tracking",
    ],
    "messaging_chat": [
        "one-on-one chat", "group chat", "voice messages", "video calls",
        "voice calls", "read receipts", "typing indicators", "emoji",
        "stickers", "file sharing", "status", "reactions", "encryption",
    ],
    "education": [
        "courses", "video lessons", "lessons", "quizzes", "progress tracking",
        "certificates", "forums", "assignments", "grades", "flashcards",
        "live classes", "badges", "leaderboard",
    ],
    "game": [
        "levels", "scores", "scoring", "achievements", "leaderboards",
        "power-ups", "characters", "multiplayer", "sound effects",
        "difficulty", "save progress", "in-app purchases",
    ],
    "finance": [
        "budgets", "expense tracking", "expenses", "income", "categories",
        "charts", "reports", "bank sync", "bills", "savings goals",
        "transactions", "portfolio", "alerts",
    ],
    "dating": [
        "profiles", "matching", "swipe", "chat", "filters", "preferences",
        "verification", "video chat", "icebreakers", "location",
    ],
    "travel": [
        "itinerary", "flight search", "hotel booking", "bookings", "maps",
        "reviews", "trip planner", "offline maps", "currency converter",
        "packing list",
    ],
    "music": [
        "playlists", "streaming", "offline listening", "lyrics", "radio",
        "recommendations", "artists", "albums", "equalizer", "queue",
    ],
    "video": [
        "streaming", "watchlist", "recommendations", "subtitles",
        "downloads", "comments", "channels", "live streaming", "playlists",
    ],
    "photo": [
        "filters", "editing", "crop", "albums", "gallery", "sharing",
        "cloud backup", "collage", "stickers",
    ],
    "news": [
        "articles", "categories", "bookmarks", "notifications", "comments",
        "newsletter", "offline reading", "personalized feed",
    ],
    "weather": [
        "forecast", "hourly forecast", "radar", "alerts", "widgets",
        "locations", "air quality",
    ],
    "meditation": [
        "guided meditations", "sessions", "timer", "sleep sounds",
        "breathing exercises", "streaks", "reminders", "progress",
    ],
    "pet_care": [
        "pet profiles", "vet appointments", "reminders", "vaccinations",
        "feeding schedule", "walk tracking", "health records",
    ],
    "real_estate": [
        "listings", "property search", "filters", "maps", "virtual tours",
        "saved searches", "mortgage calculator", "agent contact",
    ],
    "healthcare": [
        "appointments", "doctor profiles", "prescriptions", "medical records",
        "reminders", "video consultations", "symptom checker",
    ],
    "booking": [
        "bookings", "availability", "calendar", "time slots", "reminders",
        "payments", "cancellations", "reviews",
    ],
    "delivery": [
        "order tracking", "live tracking", "driver app", "orders",
        "delivery status", "payments", "ratings", "notifications",
    ],
    "crm": [
        "contacts", "leads", "pipeline", "deals", "tasks", "reports",
        "email integration", "notes", "reminders", "dashboard",
    ],
    "hr": [
        "employee profiles", "payroll", "attendance", "leave requests",
        "recruitment", "onboarding", "performance reviews", "documents",
    ],
}
