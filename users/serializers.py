from rest_framework import serializers


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField(allow_blank=True, required=False, default='', trim_whitespace=True)
    password = serializers.CharField(allow_blank=True, required=False, default='', trim_whitespace=False)
