import pytest


@pytest.fixture
def itinerary_payload():
    return {
        "destination": "Kyoto",
        "country": "Japan",
        "days": 2,
        "travelStyle": "Cultural",
        "overview": "Temples, gardens and food markets.",
        "tips": ["Buy an ICOCA card", "Start early at Fushimi Inari"],
        "itinerary": [
            {
                "day": 1,
                "theme": "Eastern Kyoto",
                "activities": [
                    {
                        "time": "08:00 AM",
                        "activity": "Kiyomizu-dera",
                        "description": "Wooden stage over the hillside.",
                        "duration": "2 hours",
                        "type": "culture",
                    },
                    {
                        "time": "12:30 PM",
                        "activity": "Nishiki Market",
                        "description": "Street food lunch.",
                        "duration": "1.5 hours",
                        "type": "food",
                    },
                ],
                "meals": {"breakfast": "Hotel", "lunch": "Nishiki Market", "dinner": "Pontocho"},
                "accommodation": "Gion",
            },
            {
                "day": 2,
                "theme": "Arashiyama",
                "activities": [
                    {
                        "time": "09:00 AM",
                        "activity": "Bamboo Grove",
                        "description": "Walk through the grove.",
                        "duration": "1 hour",
                        "type": "attraction",
                    }
                ],
                "meals": {"breakfast": "Cafe", "lunch": "Tofu", "dinner": "Kaiseki"},
            },
        ],
    }
