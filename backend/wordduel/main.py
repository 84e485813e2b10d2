from flask import Blueprint, jsonify

from wordduel import get_coordinator

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Word duel Socket.IO server is running.'})

@main.route('/api/leaderboard')
def leaderboard():
    return jsonify(get_coordinator().standings())

@main.route('/api/stats')
def stats():
    return jsonify(get_coordinator().stats())
