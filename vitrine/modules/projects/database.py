"""
Projects Database
=================

The `projects` table and its CRUD helpers.
`image_url` and `screenshots` hold any supported image encoding:
external URL, Base64 data URL, /uploads/ path or image-service URL.
"""

import logging
import re
import unicodedata
from datetime import datetime, timezone

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from ...core.database import Database, db
from ...core.logging_service import LoggingService
from ...core.storage import delete_image, is_owned_image

logger = logging.getLogger(__name__)

SLUG_MAX_LENGTH = 100
TITLE_MAX_LENGTH = 200


class SlugConflictError(ValueError):
    """Another project already uses this slug"""


def _utcnow():
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Project(db.Model):
    __tablename__ = 'projects'

    id = db.Column(db.Integer, primary_key=True)
    slug = db.Column(db.String(SLUG_MAX_LENGTH), nullable=False, unique=True, index=True)
    title = db.Column(db.String(TITLE_MAX_LENGTH), nullable=False)
    short_description = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.Text, nullable=False)
    description = db.Column(db.Text)
    live_demo_url = db.Column(db.Text)
    github_repo_url = db.Column(db.Text)
    screenshots = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def image_references(self):
        """Main image followed by screenshots"""
        return [self.image_url] + list(self.screenshots or [])

    def to_dict(self):
        return {
            'id': self.id,
            'slug': self.slug,
            'title': self.title,
            'short_description': self.short_description,
            'image_url': self.image_url,
            'description': self.description,
            'live_demo_url': self.live_demo_url,
            'github_repo_url': self.github_repo_url,
            'screenshots': list(self.screenshots or []),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<Project {self.slug}>'


# ===== Database Helper Functions =====

def init_projects_db():
    """Create the projects table and migrate older schemas"""
    Project.__table__.create(bind=db.engine, checkfirst=True)

    # Migration: the Base64 era stored the main image in image_base64
    columns = Database.column_names('projects')
    if 'image_base64' in columns and 'image_url' not in columns:
        logger.info("Adding image_url column to projects table...")
        Database.add_column('projects', 'image_url', 'TEXT')
        with db.engine.begin() as conn:
            conn.execute(text('UPDATE projects SET image_url = image_base64 WHERE image_url IS NULL'))


def get_all_projects_db():
    """All projects, newest first"""
    return Project.query.order_by(Project.created_at.desc(), Project.id.desc()).all()


def get_project_by_slug_db(slug):
    """Get single project by slug"""
    return Project.query.filter_by(slug=slug).first()


def slug_exists(slug, exclude_id=None):
    query = Project.query.filter(Project.slug == slug)
    if exclude_id is not None:
        query = query.filter(Project.id != exclude_id)
    return db.session.query(query.exists()).scalar()


def slugify(value):
    """URL-friendly slug: lowercase words joined by hyphens"""
    value = unicodedata.normalize('NFKD', value or '').encode('ascii', 'ignore').decode('ascii')
    slug = re.sub(r'[^\w\s-]', '', value.lower())
    slug = re.sub(r'[-\s_]+', '-', slug)
    return slug.strip('-')[:SLUG_MAX_LENGTH].strip('-')


def create_slug(title):
    """Create URL-friendly slug with uniqueness checking"""
    base_slug = slugify(title) or 'project'
    slug = base_slug
    counter = 1

    while slug_exists(slug):
        suffix = f"-{counter}"
        slug = f"{base_slug[:SLUG_MAX_LENGTH - len(suffix)]}{suffix}"
        counter += 1

    return slug


def _commit():
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise SlugConflictError('Slug already exists') from e
    except Exception:
        db.session.rollback()
        raise


def create_project_db(**fields):
    """Create new project in database"""
    project = Project(**fields)
    db.session.add(project)
    _commit()
    return project


def update_project_db(project, **changes):
    """Apply changes to an existing project"""
    for key, value in changes.items():
        setattr(project, key, value)
    project.updated_at = _utcnow()
    _commit()
    return project


def delete_project_db(project):
    """Delete project from database"""
    db.session.delete(project)
    _commit()


def image_in_use(url):
    """Check if an image is referenced as main image or screenshot by any project"""
    if Project.query.filter(Project.image_url == url).first():
        return True
    # screenshots is a JSON list, so scan in Python to stay portable across backends
    return any(url in (p.screenshots or []) for p in Project.query.all())


def release_unused_images(urls):
    """Delete stored images that no project references any more.

    Only saved files and image-service images are touched. Failures are logged.
    Returns the number of images deleted.
    """
    released = 0
    for url in dict.fromkeys(urls):
        if not is_owned_image(url) or image_in_use(url):
            continue
        try:
            if delete_image(url):
                released += 1
        except Exception as e:
            logger.warning("Could not release image %s: %s", url[:120], e)
            LoggingService.warning('projects', 'Could not release image', {'url': url[:500], 'error': str(e)})
    return released


SAMPLE_PROJECTS = [
    {
        'slug': 'personal-portfolio-website',
        'title': 'Personal Portfolio Website',
        'short_description': 'This project is a personal portfolio website built with Next.js '
                             'and Tailwind CSS to showcase my work and skills.',
        'image_url': 'https://via.placeholder.com/800x450?text=Personal+Portfolio+Website',
        'description': 'This website was built to showcase my work and skills...',
        'live_demo_url': 'https://example-portfolio.vercel.app',
        'github_repo_url': 'https://github.com/user/portfolio-repo',
        'screenshots': [
            'https://via.placeholder.com/800x450?text=Screenshot+1+Portfolio',
            'https://via.placeholder.com/800x450?text=Screenshot+2+Portfolio',
        ],
    },
    {
        'slug': 'to-do-list-app',
        'title': 'To-Do List Application',
        'short_description': 'An application for managing daily tasks with a clean and intuitive interface.',
        'image_url': 'https://via.placeholder.com/800x450?text=To-Do+List+App',
        'description': 'A full-featured to-do list application...',
        'live_demo_url': 'https://example-todo.vercel.app',
        'github_repo_url': 'https://github.com/user/todo-repo',
        'screenshots': [
            'https://via.placeholder.com/800x450?text=Screenshot+1+TODO',
            'https://via.placeholder.com/800x450?text=Screenshot+2+TODO',
        ],
    },
]


def seed_projects_db(samples=None):
    """Replace every project with the sample set. Returns the number inserted."""
    samples = SAMPLE_PROJECTS if samples is None else samples
    try:
        Project.query.delete()
        for sample in samples:
            db.session.add(Project(**sample))
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return len(samples)
