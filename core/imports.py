from flask import Flask, request, jsonify, Blueprint, redirect, current_app
from flask_jwt_extended import create_access_token, get_jwt_identity, jwt_required, JWTManager
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError, IntegrityError
from flask_migrate import Migrate
from flask_bcrypt import Bcrypt
from flasgger import Swagger
from flask_cors import CORS
from sqlalchemy import func
from datetime import datetime
from decimal import Decimal
import logging
