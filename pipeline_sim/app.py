from flask import Flask, request, jsonify
from flask_cors import CORS

from .display import format_word, parse_word
from .simulator import Simulator


def create_app(simulator: Simulator = None):
    app = Flask(__name__)
    CORS(app)  # Enable CORS for all routes
    sim = simulator if simulator is not None else Simulator()
    app.config["SIMULATOR"] = sim

    def state_response(**extra):
        status = sim.status()
        status["register_display"] = [format_word(value) for value in status["registers"]]
        status["errors"] = [str(error) for error in sim.errors.drain()]
        status.update(extra)
        return jsonify(status)

    def bad_request(message):
        return jsonify({"error": message}), 400

    def program_lines(data):
        program = data.get("program")
        if isinstance(program, str):
            return program.split("\n")
        if isinstance(program, list) and all(isinstance(line, str) for line in program):
            return program
        return None

    def word_value(data):
        if "value" not in data:
            raise ValueError("missing 'value'")
        return parse_word(data["value"])

    @app.route('/state', methods=['GET'])
    def state():
        return state_response()

    @app.route('/program', methods=['POST'])
    def load_program():
        lines = program_lines(request.get_json(silent=True) or {})
        if lines is None:
            return bad_request("'program' must be a string or a list of lines")
        sim.load_program(lines)
        return state_response()

    @app.route('/step', methods=['POST'])
    def step():
        line = sim.step_once()
        return state_response(line=line)

    @app.route('/run', methods=['POST'])
    def run():
        data = request.get_json(silent=True) or {}
        speed = data.get("speed")
        if speed is not None and (not isinstance(speed, (int, float)) or speed < 0):
            return bad_request("'speed' must be a non-negative number of milliseconds")
        sim.start(speed)
        return state_response(), 202

    @app.route('/stop', methods=['POST'])
    def stop():
        sim.stop()
        return state_response()

    @app.route('/reset', methods=['POST'])
    def reset():
        sim.reset()
        return state_response()

    @app.route('/simulate', methods=['POST'])
    def simulate():
        data = request.get_json(silent=True) or {}
        if "program" in data:
            lines = program_lines(data)
            if lines is None:
                return bad_request("'program' must be a string or a list of lines")
            sim.load_program(lines)
        sim.run_to_completion()
        return state_response()

    @app.route('/memory', methods=['GET'])
    def memory():
        start = request.args.get("start", 0, type=int)
        count = request.args.get("count", 64, type=int)
        words = sim.memory.dump(start, count)
        return jsonify([
            {"address": f"{address:04X}", "value": value, "display": format_word(value)}
            for address, value in words
        ])

    @app.route('/registers/<int:index>', methods=['PUT'])
    def write_register(index):
        try:
            value = word_value(request.get_json(silent=True) or {})
        except ValueError as e:
            return bad_request(str(e))
        sim.write_register(index, value)
        return state_response()

    @app.route('/memory/<int:address>', methods=['PUT'])
    def write_memory(address):
        try:
            value = word_value(request.get_json(silent=True) or {})
        except ValueError as e:
            return bad_request(str(e))
        sim.write_word(address, value)
        return state_response(word=format_word(sim.read_word(address)))

    @app.route('/snapshot', methods=['POST'])
    def snapshot():
        sim.snapshot()
        return state_response()

    @app.route('/restore', methods=['POST'])
    def restore():
        sim.restore()
        return state_response()

    return app
