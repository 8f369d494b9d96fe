"""Seed character classes, the global event catalogue and optional demo data.

Usage: python scripts/seed_demo.py [--demo]

Running it twice is safe: rows that already exist (by name or email) are
left alone.
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `classquest` imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session, select
from classquest import models, repositories
from classquest.database import engine, create_db_and_tables
from classquest.services.auth import PWD_CTX

CHARACTER_CLASSES = [
    {"name": "Mage", "description": "Fragile but quick spellcaster", "speed": 8},
    {"name": "Warrior", "description": "Sturdy front-line fighter", "speed": 6},
]

GLOBAL_EVENTS = [
    {"name": "Devastating Earthquake", "type": "disaster", "rank": "S", "health": -10, "gold": -500, "energy": -80,
     "description": "The ground splits open and everyone is badly hurt."},
    {"name": "Ancient Dragon Attack", "type": "disaster", "rank": "A", "health": -7, "gold": -300, "energy": -50,
     "description": "A dragon descends on the town and burns through the treasury."},
    {"name": "Magic Storm", "type": "disaster", "rank": "B", "health": -3, "energy": -60,
     "description": "A storm of raw magic drains everyone's energy."},
    {"name": "Long Eclipse", "type": "disaster", "rank": "C", "health": -2, "energy": -30,
     "description": "The sun goes dark and everyone feels weaker."},
    {"name": "Rainy Day", "type": "neutral", "rank": "D", "energy": -10,
     "description": "An ordinary rainy day leaves everyone a little tired."},
    {"name": "Legendary Treasure", "type": "fortune", "rank": "S", "gold": 1000, "experience": 500, "energy": 100,
     "description": "A long lost treasure is found and shared with everyone."},
    {"name": "Imperial Festival", "type": "fortune", "rank": "A", "gold": 500, "experience": 300, "energy": 80,
     "description": "The emperor throws a festival with generous rewards."},
    {"name": "Meteor Shower", "type": "fortune", "rank": "B", "gold": 200, "experience": 100, "energy": 50,
     "description": "Falling stars bless the whole class."},
    {"name": "Village Celebration", "type": "fortune", "rank": "C", "gold": 100, "energy": 30,
     "description": "A local holiday leaves everyone refreshed."},
    {"name": "Sunny Day", "type": "neutral", "rank": "D", "energy": 10,
     "description": "A pleasant sunny day lifts everyone's spirits."},
]


def _ensure_user(session: Session, name: str, email: str, username: str, password: str, admin: bool = False):
    users = repositories.UserRepository(session)
    user = users.get_by_email(email)
    if user:
        return user
    return users.save(models.User(name=name, email=email, username=username,
                                  password_hash=PWD_CTX.hash(password), is_admin=admin))


def seed_catalogue(session: Session):
    created = 0
    for data in CHARACTER_CLASSES:
        if not session.exec(select(models.CharacterClass).where(models.CharacterClass.name == data["name"])).first():
            session.add(models.CharacterClass(**data))
            created += 1
    for data in GLOBAL_EVENTS:
        if not session.exec(select(models.Event).where(models.Event.name == data["name"])).first():
            session.add(models.Event(is_global=True, is_active=True, **data))
            created += 1
    session.commit()
    print(f'Catalogue rows created: {created}')


def seed_demo(session: Session):
    """One admin, one teacher with a course and group, and two enrolled students."""
    _ensure_user(session, 'Admin', 'admin@classquest.dev', 'admin', 'admin123', admin=True)
    teacher_user = _ensure_user(session, 'Ada Teacher', 'teacher@classquest.dev', 'ada', 'teacher123')
    teachers = repositories.TeacherRepository(session)
    teacher = teachers.get_by_user(teacher_user.id) or teachers.save(models.Teacher(user_id=teacher_user.id))
    if teachers.course_ids(teacher.id):
        print('Demo course already present, skipping')
        return
    course = models.Course(name='Intro to Programming', description='Demo course')
    session.add(course)
    session.flush()
    teachers.link(teacher.id, course.id)
    group = models.Group(course_id=course.id, name='Red Dragons')
    session.add(group)
    session.flush()
    mage = session.exec(select(models.CharacterClass).where(models.CharacterClass.name == 'Mage')).first()
    for i, name in enumerate(['Marco', 'Isa'], start=1):
        student = _ensure_user(session, name, f'student{i}@classquest.dev', f'student{i}', 'student123')
        session.add(models.Inscription(user_id=student.id, course_id=course.id))
        member = models.Member(user_id=student.id, course_id=course.id, group_id=group.id)
        session.add(member)
        session.flush()
        session.add(models.Character(member_id=member.id, class_id=mage.id, name=f'{name} the Mage'))
    session.add(models.Task(course_id=course.id, name='Read chapter one', experience=50, gold=10))
    session.commit()
    print(f'Demo course {course.id} created with group {group.id}')


def main(demo: bool = False):
    create_db_and_tables()
    with Session(engine) as session:
        seed_catalogue(session)
        if demo:
            seed_demo(session)


if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--demo', action='store_true', help='Also create demo users, course and group')
    args = parser.parse_args()
    main(demo=args.demo)
