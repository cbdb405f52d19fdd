from classvideo.videos import metadata_key, payload_key


def make_user(**overrides):
    user = {
        'email': 'student@school.org',
        'firstName': 'alex',
        'password': 'not-a-real-hash',
        'accountType': 'student',
        'schoolName': 'Burnside',
        'licenseKey': 'STUDENT_KEY_1',
        'classCodesArray': ['7A'],
    }
    user.update(overrides)
    return user


def seed_user(store, **overrides):
    user = make_user(**overrides)
    store.put_json(f"users/{user['email']}.json", user)
    return user


def seed_video(store, title='Lab1', class_code='7A', email='student@school.org',
               school='Burnside', payload=True, metadata=True, **fields):
    video = {
        'title': title,
        'subject': 'Science',
        'userEmail': email,
        'classCode': class_code,
        'accountType': 'student',
        'schoolName': school,
        'contentType': 'video/mp4',
        'viewed': False,
        'videoPath': payload_key(school, class_code, email, title),
    }
    video.update(fields)
    if payload:
        store.put_object(payload_key(school, class_code, email, title), b'\x00\x01video', 'video/mp4')
    if metadata:
        store.put_json(metadata_key(school, class_code, email, title), video)
    return video
