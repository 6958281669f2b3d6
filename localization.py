class Translator:
    def __init__(self, language: str = "en") -> None:
        self.language = language
        self.translations = {
            "en": {},
            "sv": {
                "First time! Start light and find the right weight.": "Första gången! Börja lätt och hitta rätt vikt.",
                "Last time: {weight} kg × {reps} reps": "Senast: {weight} kg × {reps} reps",
                "Think about recovery. Consider a lighter week.": "Tänk på återhämtning. Överväg en lättare vecka.",
                "Increase to {weight} kg (you managed {reps} reps)": "Öka till {weight} kg (du klarade {reps} reps)",
                "Aim for {low}-{high} reps @ {weight} kg": "Sikta på {low}-{high} reps @ {weight} kg",
                "Keep going with {weight} kg × {reps} reps": "Fortsätt med {weight} kg × {reps} reps",
                "Increase to {weight}kg (managed {reps} reps)": "Öka till {weight}kg (klarade {reps} reps)",
                "Consider {weight}kg for more reps": "Överväg {weight}kg för fler reps",
                "Close to PR! Try to beat {weight}kg": "Nära PR! Försök slå {weight}kg",
                "Good! Aim for {low}-{high} reps": "Bra! Sikta på {low}-{high} reps",
                "Keep going with {weight}kg, aim for 8-10 reps": "Fortsätt med {weight}kg, sikta på 8-10 reps",
                "Unknown": "Okänd",
                "Push": "Push",
                "Pull": "Pull",
                "Legs": "Ben",
                "Full body": "Helkropp",
                "Upper body": "Överkropp",
                "Lower body": "Underkropp",
                "Cardio": "Kondition",
                "Custom session": "Eget pass",
            },
        }

    def set_language(self, lang: str) -> None:
        self.language = lang

    def gettext(self, key: str) -> str:
        return self.translations.get(self.language, {}).get(key, key)

    def format(self, key: str, **values) -> str:
        """Translate ``key`` and fill in its placeholders."""
        return self.gettext(key).format(**values)


WORKOUT_TYPE_LABELS = {
    "push": "Push",
    "pull": "Pull",
    "legs": "Legs",
    "full_body": "Full body",
    "upper": "Upper body",
    "lower": "Lower body",
    "cardio": "Cardio",
}


def format_number(value: float) -> str:
    """Render a weight without a trailing ``.0`` for whole numbers."""
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:g}"


translator = Translator()
