from platform_drop import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # SocketIO server also drives the background session reaper in dev
    socketio.run(app, debug=True)
