from flask import Blueprint, jsonify
from whodidit.services.games.questions import QUESTIONS

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({
        'message': 'Welcome to the Who Did It? game server!',
        'questions_available': len(QUESTIONS),
    })
