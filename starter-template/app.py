"""
Vitrine Starter Template
========================

A ready-to-run portfolio CMS with all Vitrine modules enabled.
Settings come from the environment or a .env file (see README).

Run with:
    python app.py

Visit:
    http://localhost:3001/api/projects  - Public projects API
    http://localhost:3001/dashboard     - Admin dashboard
    http://localhost:3001/health        - Health check
"""

import logging

from flask import redirect, url_for

from vitrine import create_app

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')

app = create_app()


@app.route('/')
def index():
    """Send visitors to the dashboard"""
    return redirect(url_for('dashboard.projects_list'))


if __name__ == '__main__':
    port = int(app.config['PORT'])
    print("\n" + "=" * 60)
    print(f"{app.config['BRAND_NAME']} - Vitrine")
    print("=" * 60)
    print(f"Projects API:    http://localhost:{port}/api/projects")
    print(f"Dashboard:       http://localhost:{port}/dashboard")
    print(f"Login:           http://localhost:{port}/auth/login")
    print(f"Image storage:   {app.config['IMAGE_STORAGE']}")
    print("=" * 60 + "\n")

    app.run(host='0.0.0.0', port=port, debug=app.config['ENVIRONMENT'] != 'production')
