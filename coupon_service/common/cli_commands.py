######################################################################
# Copyright 2016, 2024 John J. Rofrano. All Rights Reserved.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# https://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
######################################################################

"""
Flask CLI Command Extensions
"""
import click
from flask import current_app as app  # Import Flask application
from coupon_service.models import Admin, db


######################################################################
# Command to force tables to be rebuilt
# Usage:
#   flask db-create
######################################################################
@app.cli.command("db-create")
def db_create():
    """
    Recreates a local database. You probably should not use this on
    production. ;-)
    """
    db.drop_all()
    db.create_all()
    db.session.commit()


######################################################################
# Command to create the dashboard administrator
# Usage:
#   flask seed-admin --email admin@example.com --password secret
######################################################################
@app.cli.command("seed-admin")
@click.option("--email", envvar="ADMIN_EMAIL", required=True, help="Admin email address")
@click.option("--password", envvar="ADMIN_PASSWORD", required=True, help="Admin password")
def seed_admin(email, password):
    """Creates the admin account if it does not exist yet"""
    admin = Admin.seed(email, password)
    click.echo(f"Admin ready: {admin.email}")
