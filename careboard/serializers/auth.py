from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    """Username (or e-mail) and password.  ``account`` is accepted as an alias."""
    username = serializers.CharField(required=False, allow_blank=True)
    account = serializers.CharField(required=False, allow_blank=True)
    password = serializers.CharField(trim_whitespace=False)

    def validate(self, attrs):
        username = (attrs.get('username') or attrs.get('account') or '').strip()
        if not username:
            raise serializers.ValidationError({'username': 'Username is required'})
        return {'username': username, 'password': attrs['password']}
