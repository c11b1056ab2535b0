# putting/catalog.py
"""
Static catalogs: achievements, weekly challenge types, suggested routines
and putting games. None of this is per-user state.
"""

CHALLENGE_TYPES = [
    {"type": "accuracy", "target": 80, "desc": "Achieve 80%+ accuracy in a session", "reward": 500},
    {"type": "distance", "target": 30, "desc": "Make 5+ putts from 30+ feet", "reward": 400},
    {"type": "volume", "target": 50, "desc": "Make 50+ total putts this week", "reward": 600},
    {"type": "streak", "target": 5, "desc": "Practice 5 days this week", "reward": 700},
    {"type": "points", "target": 500, "desc": "Score 500+ points in one session", "reward": 800},
]

# Makes required from the target distance for a "distance" challenge.
DISTANCE_CHALLENGE_MAKES = 5


def _ach(id, icon, name, desc, points, category):
    return {
        "id": id,
        "icon": icon,
        "name": name,
        "desc": desc,
        "points": points,
        "category": category,
    }


ACHIEVEMENTS = [
    # Getting Started
    _ach("first_steps", "🎯", "First Steps", "Complete your first practice session", 50, "Getting Started"),
    _ach("early_bird", "🌅", "Early Bird", "Practice before 8am", 75, "Getting Started"),
    _ach("night_owl", "🦉", "Night Owl", "Practice after 8pm", 75, "Getting Started"),

    # Accuracy
    _ach("perfect_10", "💯", "Perfect 10", "Make 10 putts in a row at 100%", 100, "Accuracy"),
    _ach("ninety_percent_club", "🎖️", "90% Club", "Achieve 90%+ accuracy in a session", 125, "Accuracy"),
    _ach("flawless", "✨", "Flawless", "Complete a 50-putt session at 100%", 250, "Accuracy"),
    _ach("sharpshooter", "🎪", "Sharpshooter", "Hit 95%+ accuracy from 20+ feet", 200, "Accuracy"),

    # Points & Sessions
    _ach("century_club", "💪", "Century Club", "Score 100+ points in one session", 150, "Points & Sessions"),
    _ach("half_century", "⚡", "Half Century", "Complete 50 practice sessions", 300, "Points & Sessions"),
    _ach("centurion", "🏛️", "Centurion", "Complete 100 practice sessions", 500, "Points & Sessions"),
    _ach("point_king", "⭐", "Point King", "Earn 1000+ total points", 250, "Points & Sessions"),
    _ach("point_legend", "💎", "Point Legend", "Earn 5000+ total points", 750, "Points & Sessions"),

    # Streaks
    _ach("week_warrior", "🔥", "Week Warrior", "Practice 7 days in a row", 200, "Streaks"),
    _ach("two_week_streak", "🔥🔥", "Two Week Streak", "Practice 14 days in a row", 350, "Streaks"),
    _ach("month_master", "👑", "Month Master", "Practice 30 days in a row", 500, "Streaks"),
    _ach("iron_will", "🛡️", "Iron Will", "Practice 60 days in a row", 1000, "Streaks"),
    _ach("unstoppable", "🌟", "Unstoppable", "Practice 100 days in a row", 2000, "Streaks"),

    # Distance
    _ach("long_ranger", "📍", "Long Ranger", "Practice from 30+ feet", 100, "Distance"),
    _ach("distance_demon", "🚀", "Distance Demon", "Make 5+ putts from 40+ feet", 300, "Distance"),
    _ach("downtown_driver", "🏙️", "Downtown Driver", "Make a putt from 50+ feet", 400, "Distance"),
    _ach("extreme_range", "🎯", "Extreme Range", "Make 3+ putts from 60+ feet", 600, "Distance"),

    # Volume
    _ach("hundred_club", "💯", "Hundred Club", "Make 100 putts in one session", 200, "Volume"),
    _ach("two_hundred_club", "🎊", "Two Hundred Club", "Make 200 putts in one session", 350, "Volume"),
    _ach("marathon_putter", "🏃", "Marathon Putter", "Attempt 500 putts in one session", 400, "Volume"),
    _ach("iron_man", "🦾", "Iron Man", "Attempt 1000 putts in one session", 750, "Volume"),

    # Routines
    _ach("routine_rookie", "📋", "Routine Rookie", "Complete your first routine", 75, "Routines"),
    _ach("routine_regular", "📚", "Routine Regular", "Complete 5 different routines", 150, "Routines"),
    _ach("routine_master", "🎓", "Routine Master", "Complete all 4 routines", 200, "Routines"),
    _ach("ladder_climber", "🪜", "Ladder Climber", "Complete the Advanced Ladder routine", 100, "Routines"),
    _ach("consistency_king", "♾️", "Consistency King", "Complete Consistency Builder 3 times", 150, "Routines"),
    _ach("routine_addict", "🔄", "Routine Addict", "Complete 25 total routines", 300, "Routines"),

    # Games
    _ach("game_on", "🎮", "Game On", "View the Games tab", 25, "Games"),
    _ach("first_game", "🕹️", "First Game", "Complete your first putting game", 50, "Games"),
    _ach("game_enthusiast", "🎯", "Game Enthusiast", "Complete 10 putting games", 150, "Games"),
    _ach("game_master", "🏆", "Game Master", "Complete all 7 different game types", 350, "Games"),
    _ach("around_the_world_champ", "🌍", "World Champion", "Complete Around the World in under 15 mins", 125, "Games"),
    _ach("horse_master", "🐴", "HORSE Master", "Win 3 games of HORSE", 100, "Games"),
    _ach("perfect_streak", "🔟", "Perfect Streak", "Complete Perfect 10 Challenge", 200, "Games"),
    _ach("distance_champion", "📏", "Distance Champion", "Reach 40+ feet in Distance Ladder", 175, "Games"),
    _ach("par_shooter", "⛳", "Par Shooter", "Score par or better in Putting Par Game", 125, "Games"),
    _ach("poker_pro", "🃏", "Poker Pro", "Score 100+ points in Points Poker", 150, "Games"),
    _ach("putt_100_master", "💯", "Putt 100 Master", "Score 80+ on Putt 100", 250, "Games"),

    # Social & Competition
    _ach("social_butterfly", "🦋", "Social Butterfly", "Add 5 friends", 100, "Social & Competition"),
    _ach("friend_magnet", "🧲", "Friend Magnet", "Add 10 friends", 200, "Social & Competition"),
    _ach("podium_finish", "🥇", "Podium Finish", "Reach top 3 on leaderboard", 400, "Social & Competition"),
    _ach("top_ten", "🔟", "Top Ten", "Reach top 10 on leaderboard", 250, "Social & Competition"),
    _ach("number_one", "1️⃣", "Number One", "Reach #1 on leaderboard", 1000, "Social & Competition"),
    _ach("challenge_accepted", "✅", "Challenge Accepted", "Complete a weekly challenge", 150, "Social & Competition"),

    # Variety
    _ach("distance_explorer", "🗺️", "Distance Explorer", "Practice from 10 different distances", 175, "Variety"),
    _ach("all_ranges", "🎨", "All Ranges", "Practice from 10ft, 20ft, 30ft, 40ft, and 50ft", 250, "Variety"),
    _ach("versatile_putter", "🎭", "Versatile Putter", "Complete sessions, routines, and games", 200, "Variety"),

    # Dedication
    _ach("weekend_warrior", "📅", "Weekend Warrior", "Practice both Saturday and Sunday", 100, "Dedication"),
    _ach("daily_grinder", "⚙️", "Daily Grinder", "Practice 365 total days", 1500, "Dedication"),
    _ach("committed", "💍", "Committed", "Account active for 30 days", 200, "Dedication"),
    _ach("veteran", "🎖️", "Veteran", "Account active for 90 days", 500, "Dedication"),
    _ach("legend", "⚡", "Legend", "Account active for 365 days", 2000, "Dedication"),
    _ach("early_adopter", "🌱", "Early Adopter", "Join in the first month", 500, "Dedication"),

    # Special
    _ach("comeback_kid", "💪", "Comeback Kid", "Return to practice after 30+ day break", 150, "Special"),
    _ach("profile_complete", "📝", "Profile Complete", "Fill out all profile fields", 100, "Special"),
    _ach("disc_collector", "🥏", "Disc Collector", "Add all 3 favorite discs to profile", 75, "Special"),
]

ACHIEVEMENTS_BY_ID = {a["id"]: a for a in ACHIEVEMENTS}


SUGGESTED_ROUTINES = [
    {
        "id": "beginner_10ft",
        "name": "Beginner 10ft",
        "description": "Build confidence from close range",
        "level": "Beginner",
        "duration": "15 mins",
        "drills": [
            {"distance": 10, "attempts": 20, "description": "Warm up - get a feel for the chains"},
            {"distance": 10, "attempts": 30, "description": "Focus on smooth release"},
        ],
    },
    {
        "id": "intermediate_mixed",
        "name": "Intermediate Mixed",
        "description": "Practice from multiple distances",
        "level": "Intermediate",
        "duration": "25 mins",
        "drills": [
            {"distance": 15, "attempts": 20, "description": "Build consistency"},
            {"distance": 20, "attempts": 20, "description": "Challenge your accuracy"},
            {"distance": 25, "attempts": 15, "description": "Push your range"},
        ],
    },
    {
        "id": "advanced_ladder",
        "name": "Advanced Ladder",
        "description": "Progressive distance challenge",
        "level": "Advanced",
        "duration": "35 mins",
        "drills": [
            {"distance": 15, "attempts": 15, "description": "Start close"},
            {"distance": 20, "attempts": 15, "description": "Step back"},
            {"distance": 25, "attempts": 15, "description": "Increase difficulty"},
            {"distance": 30, "attempts": 10, "description": "Long range practice"},
            {"distance": 35, "attempts": 10, "description": "Maximum distance"},
        ],
    },
    {
        "id": "consistency_builder",
        "name": "Consistency Builder",
        "description": "Lock in your form from one distance",
        "level": "All Levels",
        "duration": "20 mins",
        "drills": [
            {"distance": 20, "attempts": 50, "description": "Find your rhythm and repeat"},
        ],
    },
]

ROUTINES_BY_ID = {r["id"]: r for r in SUGGESTED_ROUTINES}


# "target" is the number the goal check compares against; its unit depends
# on the scoring type (minutes, strokes, points, feet, putts in a row, makes).
PUTTING_GAMES = [
    {
        "id": "around_the_world",
        "name": "Around the World",
        "description": "Make putts from 8 different positions around the basket",
        "difficulty": "Easy",
        "duration": "15-20 mins",
        "scoring": {"type": "time", "goal": "Complete in under 15 minutes", "target": 15},
    },
    {
        "id": "horse",
        "name": "HORSE (Disc Golf Edition)",
        "description": "Challenge a friend to match your putting shots",
        "difficulty": "Medium",
        "duration": "20-30 mins",
        "scoring": {"type": "elimination", "goal": "Avoid spelling HORSE", "target": None},
    },
    {
        "id": "ladder_challenge",
        "name": "Distance Ladder Challenge",
        "description": "Progressive distance challenge to test your range",
        "difficulty": "Hard",
        "duration": "25-35 mins",
        "scoring": {"type": "distance", "goal": "Reach 40+ feet", "target": 40},
    },
    {
        "id": "par_game",
        "name": "Putting Par Game",
        "description": "Score par or better on a putting course",
        "difficulty": "Medium",
        "duration": "20-25 mins",
        "scoring": {"type": "strokes", "goal": "Score par (18) or better", "target": 18},
    },
    {
        "id": "perfect_10",
        "name": "Perfect 10 Challenge",
        "description": "Make 10 putts in a row without a miss",
        "difficulty": "Hard",
        "duration": "15-20 mins",
        "scoring": {"type": "streak", "goal": "Make 10 in a row", "target": 10},
    },
    {
        "id": "points_poker",
        "name": "Points Poker",
        "description": "Earn points for different putting achievements",
        "difficulty": "Easy",
        "duration": "30 mins",
        "scoring": {"type": "points", "goal": "Score 100+ points", "target": 100},
    },
    {
        "id": "putt_100",
        "name": "Putt 100",
        "description": "Track 10 separate turns of putting - each turn can have custom attempts",
        "difficulty": "Medium",
        "duration": "30-40 mins",
        "scoring": {"type": "rotations", "goal": "Make 70+ out of 100", "target": 70},
    },
]

GAMES_BY_ID = {g["id"]: g for g in PUTTING_GAMES}


def get_routine(routine_id):
    return ROUTINES_BY_ID.get(routine_id)


def get_game(game_id):
    return GAMES_BY_ID.get(game_id)
