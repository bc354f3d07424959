"""
Authentication forms using Flask-WTF.
Provides the login form with CSRF protection.
"""

from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, BooleanField
from wtforms.validators import DataRequired


class LoginForm(FlaskForm):
    """Login form with username and password."""

    username = StringField('Usuario', validators=[
        DataRequired(message='El usuario es requerido')
    ])

    password = PasswordField('Contraseña', validators=[
        DataRequired(message='La contraseña es requerida')
    ])

    remember_me = BooleanField('Recordarme')
