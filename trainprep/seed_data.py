"""
Demo dataset: Cairo / Alexandria / Giza training network.

Dates are day offsets from the day the seed runs so the calendar and the
dashboard always have upcoming sessions.
"""

DEMO_PASSWORD = "TrainPrep2024!"

USERS = [
    {"code": "DV-001", "name": "Nour Ibrahim", "email": "nour.ibrahim@example.com",
     "role": "DV", "region": "Cairo HQ", "department": "Development"},
    {"code": "DV-002", "name": "Youssef Adel", "email": "youssef.adel@example.com",
     "role": "DV", "region": "Alexandria", "department": "Development"},
    {"code": "SV-001", "name": "Mona Fathy", "email": "mona.fathy@example.com",
     "role": "SV", "region": "Cairo HQ", "department": "Development"},
    {"code": "PM-001", "name": "Karim Said", "email": "karim.said@example.com",
     "role": "PM", "region": "Cairo HQ", "department": "Programs"},
    {"code": "CC-001", "name": "Hana Mostafa", "email": "hana.mostafa@example.com",
     "role": "CC", "region": "Cairo HQ", "department": "Coordination"},
    {"code": "MB-001", "name": "Tarek Nabil", "email": "tarek.nabil@example.com",
     "role": "MB", "region": "Cairo HQ", "department": "Board"},
]

TRAINERS = [
    {"code": "TR-001", "name": "Ahmed Hassan", "email": "ahmed.hassan@example.com",
     "region": "Cairo HQ", "avatar_url": "https://api.dicebear.com/7.x/avataaars/svg?seed=Ahmed",
     "profile": {"specialization": "leadership", "rating": 4.8, "location": "Cairo",
                 "experience_years": 5, "trainings_count": 42, "availability": "available",
                 "skills": ["Team Building", "Strategic Planning", "Conflict Resolution"]}},
    {"code": "TR-002", "name": "Sara Mohamed", "email": "sara.mohamed@example.com",
     "region": "Alexandria", "avatar_url": "https://api.dicebear.com/7.x/avataaars/svg?seed=Sara",
     "profile": {"specialization": "communication", "rating": 4.9, "location": "Alexandria",
                 "experience_years": 7, "trainings_count": 65, "availability": "busy",
                 "skills": ["Public Speaking", "Presentation Skills", "Negotiation"]}},
    {"code": "TR-003", "name": "Mohamed Ali", "email": "mohamed.ali@example.com",
     "region": "Cairo HQ", "avatar_url": "https://api.dicebear.com/7.x/avataaars/svg?seed=Mohamed",
     "profile": {"specialization": "project-management", "rating": 4.7, "location": "Cairo",
                 "experience_years": 6, "trainings_count": 38, "availability": "available",
                 "skills": ["Agile", "Scrum", "Risk Management", "Budgeting"]}},
    {"code": "TR-004", "name": "Layla Mahmoud", "email": "layla.mahmoud@example.com",
     "region": "Giza", "avatar_url": "https://api.dicebear.com/7.x/avataaars/svg?seed=Layla",
     "profile": {"specialization": "technical-skills", "rating": 4.6, "location": "Giza",
                 "experience_years": 4, "trainings_count": 29, "availability": "unavailable",
                 "skills": ["Web Development", "Data Analysis", "Programming"]}},
    {"code": "TR-005", "name": "Omar Khaled", "email": "omar.khaled@example.com",
     "region": "Alexandria", "avatar_url": "https://api.dicebear.com/7.x/avataaars/svg?seed=Omar",
     "profile": {"specialization": "soft-skills", "rating": 4.5, "location": "Alexandria",
                 "experience_years": 3, "trainings_count": 24, "availability": "available",
                 "skills": ["Emotional Intelligence", "Time Management", "Teamwork"]}},
]

# ``steps`` is the workflow path walked after creation: (user code, action, inputs)
REQUESTS = [
    {"requester": "DV-001", "day_offset": 10,
     "payload": {"title": "Leadership Workshop", "location": "Cairo HQ",
                 "specialization": "leadership", "trainee_count": 20,
                 "description": "Leadership fundamentals for new team leads."},
     "steps": [("DV-001", "submit", {})]},
    {"requester": "DV-002", "day_offset": 17,
     "payload": {"title": "Communication Skills", "location": "Alexandria Branch",
                 "specialization": "communication", "trainee_count": 15,
                 "description": "Customer-facing communication refresher."},
     "steps": [("DV-002", "submit", {}),
               ("SV-001", "approve", {"trainer": "TR-002"}),
               ("PM-001", "approve", {})]},
    {"requester": "DV-001", "day_offset": -14,
     "payload": {"title": "Project Management", "location": "Cairo University",
                 "specialization": "project-management", "trainee_count": 25,
                 "description": "Planning and tracking for programme staff."},
     "steps": [("DV-001", "submit", {}),
               ("SV-001", "approve", {"trainer": "TR-003"}),
               ("PM-001", "approve", {}),
               ("TR-003", "complete", {"attendance_count": 23,
                                       "completion_notes": "Strong engagement, two no-shows.",
                                       "documents": [{"name": "attendance-sheet.pdf"}]})]},
    {"requester": "DV-001", "day_offset": 24,
     "payload": {"title": "Technical Training", "location": "Online",
                 "specialization": "technical-skills", "trainee_count": 30,
                 "description": "Data analysis basics for field officers."},
     "steps": [("DV-001", "submit", {}),
               ("SV-001", "reject", {"rejection_reason": "No technical trainer available this quarter."})]},
    {"requester": "DV-002", "day_offset": 35,
     "payload": {"location": "Alexandria Branch", "specialization": "soft-skills",
                 "trainee_count": 12},
     "steps": []},
]

CONVERSATIONS = [
    {"is_group": False, "members": ["DV-001", "SV-001"],
     "messages": [("DV-001", "I submitted the leadership workshop request."),
                  ("SV-001", "Thanks, I will review it today.")]},
    {"is_group": True, "name": "Cairo Training Team", "members": ["SV-001", "PM-001", "CC-001", "TR-001"],
     "messages": [("CC-001", "Please keep the calendar up to date for next month.")]},
]
